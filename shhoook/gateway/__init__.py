"""shhoook gateway — per-request pipeline.

  params.py     — parameter resolution (defaults < path < query < JSON body)
  template.py   — ``{name}`` expansion into the argv template
  executor.py   — sandboxed child process with deadline and combined output
  dispatcher.py — catch-all route tying the above to the endpoint registry
"""
