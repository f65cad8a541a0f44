"""
Domain services: remote install orchestration and repository configuration
"""
