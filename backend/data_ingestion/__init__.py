"""
Voting location record ingestion.

Responsibilities:
- Page through the Airtable voting-locations table.
- Request only the fields the filter engine and map page use.
- Return the full record collection as VotingRecord models.
"""
