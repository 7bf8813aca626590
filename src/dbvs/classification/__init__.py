"""CPE classification"""
