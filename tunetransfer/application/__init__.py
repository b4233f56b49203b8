"""Application layer - use cases orchestrating domain logic over infrastructure ports."""
