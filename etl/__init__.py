# WORKFLOW: ETL package for the FIAS address reference import.
# Used by: scripts/import_fias.py
# Modules include:
# 1. archive.py - Enumerate table dumps inside the FIAS ZIP archive
# 2. xml_stream.py - Stream element attributes out of an XML dump
# 3. records.py - Assemble, default, filter and stamp records
# 4. ingest_archive.py - Insert accepted records into the rdev___fias_* tables
# 5. full_address.py - Recompute full hierarchical addresses in the store
# 6. lexemes.py - Build the prefix-lexeme search index in batches
# 7. pipeline.py - Run the stages selected by the run mode
#
# ETL flow: ZIP -> XML -> Records -> Tables -> Full addresses -> Lexeme index

"""
ETL package for the FIAS address reference import.
"""
