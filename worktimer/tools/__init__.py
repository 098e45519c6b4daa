"""Text-returning tool handlers for driving the tracker from an agent."""