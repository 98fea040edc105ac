"""
Voting location filtering engine.

Responsibilities:
- Accept user filter criteria (borough, category, date range, zip, address).
- Narrow the master voting-location record set to matching candidates.
- Rank candidates by zip-code or geocoded-address proximity.
- Return ordered records ready for presentation.
"""
