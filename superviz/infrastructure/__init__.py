"""
Infrastructure implementations
"""
