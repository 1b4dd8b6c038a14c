"""Document routing agents.

Agent architecture for routing free-form business documents:
  Classifier — LLM-based format + intent detection
  EmailAgent — CRM lead extraction with rule-based priority / next actions
  JsonAgent  — FlowBit envelope from webhook / API payloads
  Generic    — summary extractor, also the fallback for failed extractions
  Router     — pipeline controller (no LLM): classify -> dispatch -> record
"""
