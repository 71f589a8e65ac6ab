"""
Authorization core.

Implements the Owner > Admin > Viewer role hierarchy, the two-level
organization scope resolver and the task/user/organization access policy
for organization-scoped role-based access control.
"""
