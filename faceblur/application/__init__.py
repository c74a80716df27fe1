"""
Application layer: the blur pipeline and its building blocks
"""
