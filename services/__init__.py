"""Business services: reports, calendar, mutations, auth and invalidation."""
