"""Browser HTML with inline CSS and vanilla JS."""


def get_dashboard_html() -> str:
    return """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Spool</title>
<style>
  :root {
    --bg: #0d1117; --surface: #161b22; --border: #30363d;
    --text: #e6edf3; --text-muted: #8b949e; --text-dim: #6e7681;
    --open: #58a6ff; --complete: #3fb950; --accent: #58a6ff;
  }
  * { margin: 0; padding: 0; box-sizing: border-box; }
  body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Helvetica, Arial, sans-serif;
         background: var(--bg); color: var(--text); line-height: 1.5; }
  .container { max-width: 960px; margin: 0 auto; padding: 24px 16px; }

  header { display: flex; justify-content: space-between; align-items: center;
           padding-bottom: 16px; border-bottom: 1px solid var(--border); margin-bottom: 24px; }
  header h1 { font-size: 20px; font-weight: 600; }
  header select { background: var(--surface); color: var(--text); border: 1px solid var(--border);
                  padding: 6px 12px; border-radius: 6px; font-size: 14px; cursor: pointer; }

  .task-list { display: flex; flex-direction: column; gap: 2px; }
  .task-card { background: var(--surface); border: 1px solid var(--border);
               border-radius: 8px; padding: 12px 16px; cursor: pointer; }
  .task-header { display: flex; align-items: center; gap: 10px; }
  .badge { display: inline-block; padding: 2px 10px; border-radius: 12px; font-size: 11px;
           font-weight: 600; text-transform: uppercase; letter-spacing: 0.5px; }
  .badge.open { background: rgba(88,166,255,0.15); color: var(--open); }
  .badge.complete { background: rgba(63,185,80,0.15); color: var(--complete); }
  .task-title { font-weight: 600; font-size: 14px; }
  .task-id { font-size: 12px; color: var(--text-dim); font-family: monospace; }
  .task-details { margin-top: 6px; font-size: 13px; color: var(--text-muted); display: none;
                  flex-direction: column; gap: 3px; }
  .task-card.expanded .task-details { display: flex; }
  .task-details code { background: var(--bg); padding: 1px 5px; border-radius: 3px; font-size: 12px; }
  .comment { border-left: 2px solid var(--border); padding-left: 8px; margin-top: 4px; }

  .empty { text-align: center; padding: 48px; color: var(--text-muted); }
</style>
</head>
<body>
<div class="container">
  <header>
    <h1>Spool</h1>
    <select id="status-picker">
      <option value="open">Open</option>
      <option value="complete">Complete</option>
      <option value="all">All</option>
    </select>
  </header>
  <div id="content"><div class="empty">Loading...</div></div>
</div>

<script>
async function fetchJSON(path) {
  const res = await fetch(path);
  if (!res.ok) return null;
  return res.json();
}

async function loadTasks() {
  const status = document.getElementById('status-picker').value;
  const content = document.getElementById('content');
  const tasks = await fetchJSON(`/api/tasks?status=${status}`);

  if (!tasks || tasks.length === 0) {
    content.innerHTML = '<div class="empty">No tasks found.</div>';
    return;
  }
  content.innerHTML = '<div class="task-list">' + tasks.map(renderTask).join('') + '</div>';
}

function renderTask(task) {
  let details = '';
  if (task.description) details += `<div>${esc(task.description)}</div>`;
  if (task.priority) details += `<div>Priority: <code>${esc(task.priority)}</code></div>`;
  if (task.assignee) details += `<div>Assignee: <code>${esc(task.assignee)}</code></div>`;
  if (task.tags.length) details += `<div>Tags: ${task.tags.map(t => `<code>${esc(t)}</code>`).join(' ')}</div>`;
  details += `<div>Created ${esc(task.created)} by ${esc(task.created_by)} on <code>${esc(task.created_branch)}</code></div>`;
  if (task.completed) details += `<div>Completed ${esc(task.completed)} (${esc(task.resolution)})</div>`;
  if (task.parent) details += `<div>Parent: <code>${esc(task.parent)}</code></div>`;
  if (task.blocks.length) details += `<div>Blocks: ${task.blocks.map(b => `<code>${esc(b)}</code>`).join(', ')}</div>`;
  if (task.blocked_by.length) details += `<div>Blocked by: ${task.blocked_by.map(b => `<code>${esc(b)}</code>`).join(', ')}</div>`;
  for (const c of task.comments) {
    details += `<div class="comment">[${esc(c.ts)} - ${esc(c.by)}] ${esc(c.body)}</div>`;
  }

  return `<div class="task-card" onclick="this.classList.toggle('expanded')">
    <div class="task-header">
      <span class="badge ${task.status}">${esc(task.status)}</span>
      <span class="task-title">${esc(task.title)}</span>
      <span class="task-id">${esc(task.id)}</span>
    </div>
    <div class="task-details">${details}</div>
  </div>`;
}

function esc(s) {
  if (!s) return '';
  const d = document.createElement('div');
  d.textContent = s;
  return d.innerHTML;
}

document.getElementById('status-picker').addEventListener('change', loadTasks);
loadTasks();
</script>
</body>
</html>"""
