# Membership domain services: period policy, continuity, engagement and the ledger
