"""Core domain package for courier.

Core contains dedup, identity resolution, routing and forwarding logic without
any Telethon or HTTP-specific code, keeping the business logic portable.
"""
