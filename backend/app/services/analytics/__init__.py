"""
Analytics engine and analyzers
"""
