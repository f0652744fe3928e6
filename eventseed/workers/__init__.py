"""Per-phase workers: generation stage, bounded pipeline, batch loaders.

One phase runs as::

    WorkCountdown → GenerationStage (process pool) → BoundedPipeline → BatchLoader × N → PostgreSQL
"""
