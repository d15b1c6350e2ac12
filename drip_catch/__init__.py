"""
Drip Catch Package
==================

This package contains the simulation core for Drip Catch, an LCD-style
reflex game where the player runs a bucket between ceiling leaks and a
toilet before the water reaches the floor. It controls:

- Leak warning and drop release timing
- Drop descent and catch resolution
- Lives, score and reward unlocks
- Difficulty ramp (concurrent drops, fall speed)
- Game phases (attract, starting, playing, game over)

All tunable parameters are in game_config.yaml.
"""
