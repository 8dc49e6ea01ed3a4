"""
Repo Video - Test Suite
"""
