"""CodeMentor: retrieval-augmented DSA problem analysis and interview coaching."""

__version__ = "1.0.0"
