"""
Infrastructure
==============

Technical building blocks shared by modules (database engine and sessions).
"""
