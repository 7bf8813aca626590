"""Scan target detection"""
