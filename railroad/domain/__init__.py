# Context assembly for a conversational agent
#
#  message (+ seed context)
#         |
#         v
# +---------------------+     +---------------------+
# |  message-analysis   | --> |   session-context   |
# +---------------------+     +---------------------+
#                                        |
#                                        v
# +---------------------+     +---------------------+
# |   social-context    | <-- |   memory-context    |
# +---------------------+     +---------------------+
#         |
#         v
# +---------------------+
# | personality-context |
# +---------------------+
#         |
#         v
#   PipelineResult --> digest + directives --> [LLM reply]
#
# Each stage returns a superset of the context it was given.
# A stage that raises is recorded and skipped; later stages still run.
