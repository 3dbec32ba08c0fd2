"""
Command-line tools for toastline.
"""
