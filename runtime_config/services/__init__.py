"""
Services Package

Business logic for runtime settings: version codes, cache keys, rollout
evaluation, value encoding and the engine that ties them together.
"""
