"""
Trace a simulated checkout request and print the span tree and metrics.

Run with: python examples/checkout_trace.py [--jsonl traces.jsonl]
"""

import argparse
import logging
import time

from trace_debugger import ConsoleExporter, JsonLinesExporter, create_tracer
from trace_debugger.exporters import TraceExporter

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


class CombinedExporter(TraceExporter):
    def __init__(self, *exporters):
        self.exporters = exporters

    def export(self, trace, metrics=None):
        for exporter in self.exporters:
            exporter.export(trace, metrics)


def checkout(tracer):
    trace = tracer.start_trace("POST /checkout")

    tracer.start_span(trace.trace_id, "validate")
    time.sleep(0.05)
    tracer.end_span(trace.trace_id)

    span = tracer.start_span(trace.trace_id, "database_query")
    span.set_attribute("query", "SELECT * FROM carts WHERE id = 42")
    time.sleep(0.03)
    tracer.end_span(trace.trace_id)

    tracer.start_span(trace.trace_id, "charge")
    tracer.start_span(trace.trace_id, "gateway-call")
    time.sleep(0.15)
    tracer.end_span(trace.trace_id)
    time.sleep(0.05)
    tracer.end_span(trace.trace_id)

    return tracer.finish_trace(trace.trace_id)


def main():
    parser = argparse.ArgumentParser(description="Trace a simulated checkout request")
    parser.add_argument("--jsonl", help="Also append the trace to this JSON Lines file")
    args = parser.parse_args()

    exporter = ConsoleExporter()
    if args.jsonl:
        exporter = CombinedExporter(exporter, JsonLinesExporter(args.jsonl))

    tracer = create_tracer("shop", exporter=exporter)
    trace = checkout(tracer)

    slow = [span.name for span in trace.get_slow_operations(100)]
    print(f"Slow operations (>100ms): {', '.join(slow) or 'none'}")
    print(f"Store stats: {tracer.get_stats().model_dump()}")


if __name__ == "__main__":
    main()
