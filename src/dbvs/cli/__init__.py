"""DBVS command line interface"""
