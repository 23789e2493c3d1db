"""
Splitting of exercise code into solution and placeholder.

Code blocks in course documents contain the solution of an exercise together
with the placeholder that is handed out to students; directives in comments
mark which lines belong to which version.
"""
