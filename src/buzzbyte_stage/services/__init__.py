"""Service layer for BuzzByte Stage."""
