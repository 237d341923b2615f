"""
Meeting Manager package
"""
