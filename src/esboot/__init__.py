"""
esboot - Elasticsearch container startup wrapper

Prepares an Elasticsearch node before handing the process over to it:
- Sizes the JVM heap from the instance RAM request and the cgroup ceiling
- Renders the Search Guard role mapping for the Prometheus scraper
- Copies the mounted configuration into the live config directory
- Spawns a background unit that waits for the secured REST endpoint
  and then pushes the bundled index templates

Components:
- memory     - heap sizing
- readiness  - mutual-TLS readiness polling
- templates  - index template publishing
- launcher   - orchestration and exec of the server
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
