"""
Infrastructure layer: adapters for decoding, detection, storage and external services
"""
