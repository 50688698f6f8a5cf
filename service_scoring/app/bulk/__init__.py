"""
Bulk score recomputation over the whole lead collection.
"""
