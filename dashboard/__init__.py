"""
Dashboard business rules: PR enrichment, sorting/filtering, permissions
and the multi-repository PR service.
"""
