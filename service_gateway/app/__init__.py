"""
Gateway Service package for the Game Store backend.

The gateway fronts client requests for the games catalog, wishlists,
reviews, orders and the contact form, forwarding each one to the managed
backend-as-a-service:
- Authentication: bearer tokens resolved by the identity provider
- Storage: one scoped operation per request against the relational store

Structure:
- app.main: FastAPI app, routes, and wiring.
- app.adapters: HTTP clients for the identity provider and the store.
- app.domain: Auth guard, request models, response shaping.
"""
