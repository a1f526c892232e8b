"""
Knowledge base service: store text, files and video transcripts with a
deterministic pseudo-embedding and search them by cosine similarity.
"""
