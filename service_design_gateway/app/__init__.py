"""
Design Gateway service package.

The gateway fronts an exploring agent's queries against the Figma REST API,
enforcing:
- Admission control: tiered sliding-window rate limiting
- Caching: process-lifetime memo of upstream responses
- Throttle recovery: server-hinted sleep and retry
- Bounded responses: pagination and token-aware envelopes

Structure:
- app.ratelimit: Sliding-window admission limiter.
- app.caching: Response cache keyed by request signature.
- app.adapters: HTTP client for the design API.
- app.domain: Document tree model and pure lookups.
- app.session: Session state and pending pagination operations.
- app.chunking: Token estimator and response chunker.
- app.handlers: Agent-facing operations composed from the above.
- app.context: Explicit per-session context wiring.
"""
