"""
Fish Stocking Services
Lifecycle, settings, reference data and notification services
"""
