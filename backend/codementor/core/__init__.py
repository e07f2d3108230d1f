"""
Core components of the analysis pipeline.

Vector index, embeddings, retrieval, prompt assembly, completion client,
interview phase transitions and response parsing.
"""
