"""
TEFA Inventory Engine
=====================
Item CRUD and stock movements with a hard floor at zero.
"""
