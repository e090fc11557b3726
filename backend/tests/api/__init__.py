"""
API tests package for the ServiceLane backend.

Covers every router: authentication, vehicles and maintenance, service
requests, quotes, jobs, messaging, notifications and activities, reviews,
providers and onboarding, the service catalogue, platform endpoints, audit,
health and the notification WebSocket.
"""
