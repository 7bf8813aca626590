"""Upstream API clients"""
