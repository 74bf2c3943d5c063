"""Zone/time scheduling board: pure core plus the board action layer."""
