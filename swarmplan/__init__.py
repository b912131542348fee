"""swarmplan - Docker Swarm topology planning toolkit."""
