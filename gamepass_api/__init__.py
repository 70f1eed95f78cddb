"""HTTP facade listing and checking Roblox gamepasses."""
