"""GitHub API access: REST client, App installation auth and OAuth exchange."""
