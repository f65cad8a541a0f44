"""
Adapters between the command line and the domain services
"""
