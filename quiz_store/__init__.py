"""
quiz_store — MongoDB access for quiz content and users.

Components:
  mongo_client — DocumentStore: connection, reads, user inserts
  registry     — allow-list of quiz collections served by dynamic routes
  models       — pydantic shapes of the documents this service writes
"""
