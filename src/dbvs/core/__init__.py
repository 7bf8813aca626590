"""Core models and errors"""
