"""HTTP boundary for BuzzByte Stage."""
