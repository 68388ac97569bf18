"""
Domain workflows used by the API routes.

Modules:
    phases: phase transition workflow and checklist template seeding
    research_jobs: research job lifecycle, page-cache invalidation, gateway dispatch
    filters: structured query filter builder for read endpoints
    search: aggregate LIKE search across entities
    pricing: TTL price cache and quote proxy
    health_probe: HEAD probes against project deployments
"""
