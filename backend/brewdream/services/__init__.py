"""
Orchestration services.

Leaf services talk to external boundaries only; the pipeline and the
clip extractor compose them.
"""
