"""
Utility modules: exceptions, JWT helpers, local favorites and FastAPI dependencies.
"""
