"""External infrastructure: LLM providers, Redis, persistence"""
