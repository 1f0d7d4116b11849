"""HTTP API - request models and routers"""
