"""Web service: FastAPI application, routers and middleware"""
