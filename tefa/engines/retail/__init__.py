"""
TEFA Retail Engine
==================
Point-of-sale checkout for the canteen and parts counter.
"""
