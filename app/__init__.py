"""Query builder service: compiles visual query descriptors into SQL and manages saved queries."""
