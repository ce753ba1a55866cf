"""Stash GraphQL collaborators: serializer, client and result cache."""
