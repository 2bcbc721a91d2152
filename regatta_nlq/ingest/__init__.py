"""CSV ingestion: row normalization, date parsing and the transactional bulk loader."""
