"""
Meeting model and storage backends
"""
