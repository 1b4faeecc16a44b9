"""Multi-tenant booking platform backend"""
