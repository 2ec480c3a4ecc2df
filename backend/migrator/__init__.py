"""Legacy platform migration engine."""
