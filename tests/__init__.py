"""
Test Suite Initialization
"""
