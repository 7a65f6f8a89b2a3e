"""Director agent, its tools and shared utilities"""
