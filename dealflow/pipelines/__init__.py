"""Batch pipelines that load entities, run the engine and persist matches.

Each step can run for a single seeker or provider (realtime, after an edit)
or across the whole book (scheduled batch).
"""
