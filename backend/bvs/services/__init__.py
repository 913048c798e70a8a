"""Business services of the BVS platform."""
