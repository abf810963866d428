"""
Quiz Generation Pipeline
quizgen/

Steps:
1. Preprocessor        — clean extracted document text into a bounded prompt subject
2. Planner             — split the requested count into batches of at most 20
3. Question Generator  — one LLM call per batch, timeout + fixed-delay retries
4. Validator           — pull the JSON object out of the reply, keep well-formed MCQs
5. Aggregator          — join all batches, order by start index, report shortfall
6. Paper Exporter      — render the quiz paper and the answer key as PDF bytes
"""
