"""
fastprops: fast/slow property classification from index-rule configuration.
"""

__version__ = "0.1.0"
