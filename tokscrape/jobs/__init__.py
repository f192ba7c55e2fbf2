from tokscrape.jobs.scrape_job import BatchSummary, ScrapePipeline, run_scrape_job

__all__ = [
    "BatchSummary",
    "ScrapePipeline",
    "run_scrape_job",
]
