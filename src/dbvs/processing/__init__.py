"""Processing pipeline"""
