"""
Fish Stocking Pydantic Schemas
Request and response models for the API
"""
