"""Core domain package for reviewbell.

Core contains name mapping, reviewer selection, message composition and the
assignment pipeline without any HipChat or HTTP-specific code, keeping the
business logic portable.
"""
