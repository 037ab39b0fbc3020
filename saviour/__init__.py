"""Position-rescue engine for undercollateralized vaults."""
