"""Version normalization, range matching and the match engine"""
