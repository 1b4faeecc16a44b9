"""Business domain - business profiles, operating hours and service catalogs"""
