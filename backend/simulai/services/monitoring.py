from prometheus_client import Counter, Histogram

class Monitoring:
    api_calls = Counter('simulai_llm_api_calls', 'LLM API call count', ['provider', 'model', 'status'])
    response_times = Histogram('simulai_llm_response_seconds', 'LLM response time', ['provider', 'model'])
    tokens_used = Counter('simulai_llm_tokens_used', 'Tokens used', ['provider', 'model', 'type'])
    reports_generated = Counter('simulai_reports_generated', 'Evaluation reports generated', ['provider'])

    @classmethod
    def track_call(cls, provider: str, model: str, status: str, seconds: float):
        cls.api_calls.labels(provider, model, status).inc()
        cls.response_times.labels(provider, model).observe(seconds)

    @classmethod
    def track_usage(cls, provider: str, model: str, prompt_tokens: int, completion_tokens: int):
        cls.tokens_used.labels(provider, model, 'prompt').inc(prompt_tokens)
        cls.tokens_used.labels(provider, model, 'completion').inc(completion_tokens)
